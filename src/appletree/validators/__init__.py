from .validator import Validator
from .school_validators import validate_school, check_school

__all__ = ["Validator", "validate_school", "check_school"]
