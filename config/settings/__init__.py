"""
Settings loader.

Picks the environment module from DJANGO_ENV (production, test, or
development when unset).
"""

import os

env = os.getenv("DJANGO_ENV", "development")

if env == "production":
    from .production import *
elif env == "test":
    from .test import *
else:
    from .development import *
