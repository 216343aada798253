"""
Settings loader for the Court Discovery service.

Picks the settings module from the DJANGO_ENV environment variable
("production", "test", anything else means development).
"""

import os

env = os.getenv("DJANGO_ENV", "development").lower()

if env in ("production", "prod"):
    from .production import *
elif env == "test":
    from .test import *
else:
    from .development import *
