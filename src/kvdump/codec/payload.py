"""Optional base64 layer applied to values on their way in and out of the store."""
import base64
import binascii


class PayloadDecodeError(ValueError):
    pass


class PayloadCodec:
    """Reversible transform between raw bytes and what is kept in the store.

    Some store deployments reject or mangle binary values. With ``encode=True``
    values are base64-encoded before they are written; with ``decode=True``
    values read back are base64-decoded. Both directions default to identity,
    so a codec can be configured for one direction only (upload with
    ``--e64``, dump with ``--d64``).

    The transform applies to values only; keys are handled by KeyPathCodec.
    """

    def __init__(self, encode: bool = False, decode: bool = False):
        self.encode = encode
        self.decode = decode

    def to_storage(self, data: bytes) -> bytes:
        if not self.encode:
            return data
        return base64.b64encode(data)

    def from_storage(self, data: bytes) -> bytes:
        """Undo to_storage().

        Line breaks are ignored, so wrapped output of other base64 encoders
        decodes as well.

        Raises:
            PayloadDecodeError: The value is not valid padded base64 (bad length or
                characters outside the standard alphabet)
        """
        if not self.decode:
            return data
        try:
            return base64.b64decode(data.translate(None, b'\r\n'), validate=True)
        except binascii.Error as e:
            raise PayloadDecodeError(f"Malformed base64 payload ({len(data)} bytes): {e}") from e

    def describe(self) -> str:
        """Short suffix for log messages."""
        if self.encode and self.decode:
            return ', base64'
        elif self.encode:
            return ', base64 encoded'
        elif self.decode:
            return ', base64-decoded'
        return ''
