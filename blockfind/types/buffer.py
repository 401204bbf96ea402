import struct

from blockfind.errors import TruncatedData


class Buffer(object):
    """
    A read cursor over a byte string. All formats are big-endian.
    """
    __slots__ = ('buff', 'pos')

    def __init__(self, data=None):
        self.buff = b""
        self.pos = 0
        if data:
            self.add(data)

    def __len__(self):
        return len(self.buff) - self.pos

    def add(self, data):
        """
        Add some bytes to the end of the buffer.
        """
        self.buff = self.buff[self.pos:] + bytes(data)
        self.pos = 0

    def discard(self):
        """
        Discards the entire buffer contents.
        """
        self.pos = len(self.buff)

    def tell(self):
        return self.pos

    def read(self, length=None):
        """
        Read *length* bytes from the beginning of the buffer, or all bytes if
        *length* is ``None``
        """
        if length is None:
            data = self.buff[self.pos:]
            self.pos = len(self.buff)
            return data

        if length < 0:
            raise TruncatedData(f"Negative read length {length}")
        if self.pos + length > len(self.buff):
            raise TruncatedData(
                f"Wanted {length} bytes at offset {self.pos}, "
                f"only {len(self)} remain")

        data = self.buff[self.pos:self.pos + length]
        self.pos += length
        return data

    def unpack(self, fmt):
        """
        Unpack a struct. The format accepts the same characters as Python's
        ``struct`` module. A single field is returned bare.
        """
        fmt = ">" + fmt
        data = self.read(struct.calcsize(fmt))
        fields = struct.unpack(fmt, data)
        if len(fields) == 1:
            fields = fields[0]
        return fields

    def unpack_array(self, fmt, count):
        """
        Unpack *count* consecutive values of the single-character format *fmt*
        as a tuple.
        """
        if count < 0:
            raise TruncatedData(f"Negative array length {count}")
        fmt = ">%d%s" % (count, fmt)
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))

    @staticmethod
    def pack(fmt, *fields):
        """
        Pack fields into a struct. The format accepts the same characters as
        Python's ``struct`` module.
        """
        return struct.pack(">" + fmt, *fields)
