# Models package
from boxbox.models.user import User
from boxbox.models.box import Box
from boxbox.models.item import Item
