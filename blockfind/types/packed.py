import struct

_sector_formats = {8: 'B', 16: 'H', 32: 'I', 64: 'Q'}


class PackedArray(object):
    """
    This class provides support for an array where values are tightly packed
    into a number of bits (such as 4 bits for light or 9 bits for height).

    All operations associated with fixed-size arrays are supported, such as
    slicing.

    Values are packed into sectors of *sector_width* bits (64 for block data).
    When *aligned* is true a value never straddles two sectors and any spare
    high bits of a sector are left as padding; otherwise values form one
    continuous bit stream across sectors. Bits are numbered from the least
    significant end of the first sector.
    """

    __slots__ = ('storage', 'length', 'value_width', 'sector_width', 'aligned')

    def __init__(self, storage, length, value_width, sector_width, aligned=True):
        self.storage = storage
        self.length = length
        self.value_width = value_width
        self.sector_width = sector_width
        self.aligned = aligned

    def __repr__(self):
        return "<PackedArray length=%d value_width=%d sector_width=%d%s>" % (
            self.length, self.value_width, self.sector_width,
            "" if self.aligned else " compact")

    # Constructors ------------------------------------------------------------

    @classmethod
    def empty(cls, length, value_width, sector_width=64, aligned=True):
        """
        Creates an empty array.
        """
        sectors = cls.sector_count(length, value_width, sector_width, aligned)
        return cls([0] * sectors, length, value_width, sector_width, aligned)

    @classmethod
    def from_bytes(cls, bytes, length, value_width, sector_width=64, aligned=True):
        """
        Deserialize a packed array from the given big-endian sector bytes.
        """
        fmt = _sector_formats[sector_width]
        count = len(bytes) // (sector_width // 8)
        storage = list(struct.unpack(">%d%s" % (count, fmt), bytes))
        return cls(storage, length, value_width, sector_width, aligned)

    @classmethod
    def from_sectors(cls, sectors, length, value_width, sector_width=64, aligned=True):
        """
        Creates an array over existing sector values. Signed sector values are
        taken as their two's complement bit pattern.
        """
        mask = (1 << sector_width) - 1
        storage = [sector & mask for sector in sectors]
        return cls(storage, length, value_width, sector_width, aligned)

    @classmethod
    def from_int_list(cls, int_list, value_width, sector_width=None, aligned=True):
        """
        Packs a list of integers. Negative values are stored as their two's
        complement bit pattern.
        """
        if sector_width is None:
            sector_width = value_width
        obj = cls.empty(len(int_list), value_width, sector_width, aligned)
        for i, value in enumerate(int_list):
            obj[i] = value
        return obj

    @staticmethod
    def sector_count(length, value_width, sector_width=64, aligned=True):
        """
        Returns the number of sectors needed to hold *length* values.
        """
        if aligned:
            per_sector = sector_width // value_width
            return -(-length // per_sector)
        return -(-(length * value_width) // sector_width)

    # Serialization -----------------------------------------------------------

    def to_bytes(self):
        """
        Serialize this packed array to big-endian sector bytes.
        """
        fmt = _sector_formats[self.sector_width]
        return struct.pack(">%d%s" % (len(self.storage), fmt), *self.storage)

    # Sequence methods --------------------------------------------------------

    def __len__(self):
        return self.length

    def __iter__(self):
        width = self.value_width
        mask = (1 << width) - 1
        remaining = self.length

        if self.aligned:
            per_sector = self.sector_width // width
            for sector in self.storage:
                for _ in range(min(per_sector, remaining)):
                    yield sector & mask
                    sector >>= width
                remaining -= per_sector
                if remaining <= 0:
                    return
        else:
            for idx in range(self.length):
                yield self[idx]

    def _locate(self, idx):
        if idx < 0:
            idx += self.length
        if not 0 <= idx < self.length:
            raise IndexError(idx)

        if self.aligned:
            per_sector = self.sector_width // self.value_width
            sector, slot = divmod(idx, per_sector)
            return sector, slot * self.value_width
        return divmod(idx * self.value_width, self.sector_width)

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return [self[i] for i in range(*idx.indices(self.length))]

        sector, offset = self._locate(idx)
        mask = (1 << self.value_width) - 1
        value = self.storage[sector] >> offset
        if offset + self.value_width > self.sector_width:
            value |= self.storage[sector + 1] << (self.sector_width - offset)
        return value & mask

    def __setitem__(self, idx, value):
        if isinstance(idx, slice):
            for i, v in zip(range(*idx.indices(self.length)), value):
                self[i] = v
            return

        sector, offset = self._locate(idx)
        mask = (1 << self.value_width) - 1
        sector_mask = (1 << self.sector_width) - 1
        value &= mask

        self.storage[sector] &= ~(mask << offset) & sector_mask
        self.storage[sector] |= (value << offset) & sector_mask
        if offset + self.value_width > self.sector_width:
            spill = self.sector_width - offset
            self.storage[sector + 1] &= ~(mask >> spill) & sector_mask
            self.storage[sector + 1] |= value >> spill

    def __eq__(self, other):
        if isinstance(other, PackedArray):
            return (self.value_width == other.value_width and
                    list(self) == list(other))
        return list(self) == other

    def to_signed(self):
        """
        Returns the values as a list of signed integers.
        """
        sign = 1 << (self.value_width - 1)
        return [value - (sign << 1) if value & sign else value for value in self]
