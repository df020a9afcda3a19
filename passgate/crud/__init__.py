# passgate/crud/__init__.py

from .crud_audit_log import audit_log
from .crud_event import event
from .crud_pass import pass_doc
from .crud_payment import payment
from .crud_team import team
from .crud_user import user
