"""Indian luxury cars site: dealer index, inventory client and batch tools.

Submodules are not imported here so scripts only pay for what they use
(boto3 and google-auth are heavy). Import them explicitly, e.g.
``from luxcars.dealers import DealerIndex``.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
