from .concurrency import ConcurrencyBudget, ResultAggregator
from .errors import DecodeError, GeometryError, ManifestError, UnpackError, WriteError
from .extractor import extract_sprite
from .manifest import Frame, Pack, Sheet, Size, Texture, load_pack, parse_pack
from .pool import SheetWorkerPool
from .unpacker import Unpacker, UnpackReport

__version__ = "0.1.0"
