from sqlalchemy.orm import declarative_base

# Single declarative base shared by every model; keep this module import-free
Base = declarative_base()
