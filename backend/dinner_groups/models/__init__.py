from dinner_groups.models.attendee import Attendee
from dinner_groups.models.dinner_group import DinnerGroup
from dinner_groups.models.restaurant import Restaurant

__all__ = [
    "Attendee",
    "DinnerGroup",
    "Restaurant",
]
