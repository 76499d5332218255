"""
API views for the consent application.
"""

from .consent_form_views import *  # noqa: F401,F403
from .game_views import *  # noqa: F401,F403
