# Schemas package (re-export feature modules for stable imports)
from .auth import *
from .users import *
from .cycles import *
from .common import *
