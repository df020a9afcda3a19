# passgate/crud/crud_event.py
from passgate.crud.base import CRUDDocument

event = CRUDDocument("events")
