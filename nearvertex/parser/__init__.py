from .contacts import ContactsParser, Position
from .vertices import VertexLoader
