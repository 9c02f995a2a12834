from .http import HttpClient, generate_url
from .postmen import Postmen

__all__ = ["HttpClient", "Postmen", "generate_url"]
