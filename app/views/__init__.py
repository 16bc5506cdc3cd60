from __future__ import annotations
from flask import Blueprint


bp = Blueprint('main', __name__)

# import and register submodules
from . import pages as _pages  # noqa: E402
from . import cars as _cars  # noqa: E402
from . import contact as _contact  # noqa: E402
from . import seo as _seo  # noqa: E402


_pages.register(bp)
_cars.register(bp)
_contact.register(bp)
_seo.register(bp)

__all__ = ['bp']
