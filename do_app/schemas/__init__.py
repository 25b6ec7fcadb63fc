"""
Do Schemas.

Pydantic models for backend payloads and locally stored records.
"""

from do_app.schemas.feed import *
from do_app.schemas.workout import *
from do_app.schemas.genie import *
from do_app.schemas.nutrition import *
from do_app.schemas.meditation import *
from do_app.schemas.recipes import *
from do_app.schemas.profile import *
from do_app.schemas.actions import *
