# passgate/crud/crud_team.py
from passgate.crud.base import CRUDDocument

team = CRUDDocument("teams")
