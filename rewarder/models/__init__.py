"""
Types here are instantiated as subclasses of pydantic's `BaseModel`.
This means we get runtime deserialization and validation for free just by using type declarations
and a couple of pydantic helpers.

Use these in your code as python objects, then serialize to json by converting to a dict with `.model_dump()`
"""

from rewarder.models.Account import *
from rewarder.models.Claim import *
from rewarder.models.Config import *
from rewarder.models.Report import *
from rewarder.models.types import *
