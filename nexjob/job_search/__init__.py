# Keep this TINY so importing the package never drags in heavy deps.
from . import lib  # so: from nexjob.job_search import lib
from .main import run  # so: from nexjob.job_search import run

__all__ = ["lib", "run"]
