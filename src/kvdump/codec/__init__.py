from .key_path import KeyPathCodec, InvalidKey, PLACEHOLDER
from .payload import PayloadCodec, PayloadDecodeError
