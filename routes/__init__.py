from flask import Blueprint

# single main blueprint for everything except auth (has its own)
main_bp = Blueprint("main", __name__)

# route modules register themselves on main_bp
from . import registration   # noqa: F401
from . import grades         # noqa: F401
from . import sections       # noqa: F401
