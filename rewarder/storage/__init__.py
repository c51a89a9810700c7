"""
Persistent state, one module per component. Each module fixes its namespace and schema version
in the table names it creates and is the only code that touches those tables.
"""

from rewarder.storage.db import DB
