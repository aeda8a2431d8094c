from yardpass.models.building import Building
from yardpass.models.apartment import Apartment
from yardpass.models.resident import Resident
from yardpass.models.user import User
from yardpass.models.pass_model import Pass
from yardpass.models.rule import Rule
from yardpass.models.scan_event import ScanEvent

__all__ = ["Building", "Apartment", "Resident", "User", "Pass", "Rule", "ScanEvent"]
