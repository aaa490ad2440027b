from .delete import delete
from .insert import insert, relocate

__all__ = ["delete", "insert", "relocate"]
