"""MD4 message digest (RFC 1320), pure Python.

This module is the managed fallback used when the platform's hashlib has no
MD4 (OpenSSL 3 moved it to the legacy provider). The context is streaming:
input is buffered across update() calls, every complete 64-byte block is
folded into the 4-word state by the compression function, and finalize()
pads, appends the bit length and returns the 16-byte digest.

The compression function and its rounds are pure: they take a state tuple
and return a new one, so each piece can be checked on its own.
"""

MASK = 0xffffffff

# 0x80 then zeros; the longest padding ever needed is 64 bytes
PADDING = b"\x80" + 63 * b"\x00"


def as_window(data, offset=0, length=None):
    """Return a flat byte memoryview over data[offset:offset + length].

    Raises TypeError for str or non-buffer input and ValueError when the
    window does not fit inside data.
    """
    if isinstance(data, str):
        raise TypeError("Strings must be encoded before hashing")
    view = memoryview(data).cast("B")
    if length is None:
        length = len(view) - offset
    if offset < 0 or length < 0 or offset + length > len(view):
        raise ValueError(
            "Window offset=%d length=%d outside of %d bytes" % (offset, length, len(view)))
    return view[offset:offset + length]


class MD4:

    name = "md4"
    digest_size = 16
    block_size = 64

    IV = (0x67452301, 0xefcdab89, 0x98badcfe, 0x10325476)

    # Per-round left-rotation amounts (RFC 1320)
    S_table = [[3, 7, 11, 19],
               [3, 5, 9, 13],
               [3, 9, 11, 15]]

    # Per-round additive constants
    K_table = [0x00000000, 0x5a827999, 0x6ed9eba1]

    # Word schedule: which message word feeds each step of a round
    X_table = [[0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15],
               [0, 4, 8, 12, 1, 5, 9, 13, 2, 6, 10, 14, 3, 7, 11, 15],
               [0, 8, 4, 12, 2, 10, 6, 14, 1, 9, 5, 13, 3, 11, 7, 15]]

    def __init__(self, data=b""):
        """Start a fresh context, optionally hashing data straight away."""
        self._buffer = bytearray(64)
        self.initialize()
        if data:
            self.update(data)

    def initialize(self):
        """Reset to the MD4 initial vector and zero the scratch buffer."""
        self.state = MD4.IV
        self.count = [0, 0]
        self._buffer[:] = bytes(64)
        self.pending_len = 0

    def __repr__(self):
        words = ", ".join("0x%08x" % w for w in self.state)
        return "MD4(state=(%s), count=%r, pending_len=%d)" % (words, self.count, self.pending_len)

    # --- word codec ---

    @staticmethod
    def encode_words(words):
        """Pack 32-bit words into bytes, least significant byte first."""
        return b"".join((w & MASK).to_bytes(4, 'little') for w in words)

    @staticmethod
    def decode_words(data, offset=0, count=16):
        """Read count little-endian 32-bit words from data starting at offset."""
        end = offset + 4 * count
        if offset < 0 or end > len(data):
            raise ValueError("Need %d bytes at offset %d, have %d" % (4 * count, offset, len(data)))
        return tuple(int.from_bytes(data[j:j + 4], 'little') for j in range(offset, end, 4))

    # --- compression function ---

    @staticmethod
    def S(i):
        """Return the rotation amount for step index i (0 <= i < 48)."""
        return MD4.S_table[i // 16][i % 4]

    @staticmethod
    def K(i):
        return MD4.K_table[i // 16]

    @staticmethod
    def X(i):
        """Return the message word index used at step i."""
        return MD4.X_table[i // 16][i % 16]

    @staticmethod
    def F(b, c, d, i):
        """MD4 boolean function selected by step index i.

        Round 0 (i < 16): (b & c) | (~b & d)
        Round 1 (i < 32): (b & c) | (b & d) | (c & d)
        Round 2 (i < 48): b ^ c ^ d
        """
        if i < 16:
            return (b & c) | (~b & d)
        elif i < 32:
            return (b & c) | (b & d) | (c & d)
        elif i < 48:
            return b ^ c ^ d
        else:
            raise ValueError("Invalid loop index")

    @staticmethod
    def ROT(x, i):
        """Rotate x left by S(i) bits, modulo 2^32."""
        x = x & MASK
        n = MD4.S(i)
        return ((x << n) | (x >> (32 - n))) & MASK

    @staticmethod
    def md4_iteration(a, b, c, d, x, i):
        """Perform one MD4 step (i) on state (a,b,c,d) with message word x.

        The target register a becomes ROT(a + F(b,c,d) + x + K(i)); the
        returned tuple is rotated to (d, a', b, c) so the next step again
        targets the first position.
        """
        comb = (a + MD4.F(b, c, d, i) + x + MD4.K(i)) & MASK
        return d, MD4.ROT(comb, i), b, c

    @staticmethod
    def md4_round(state, x, round_idx):
        """Run the 16 steps of one round over the decoded block words x."""
        if round_idx not in (0, 1, 2):
            raise ValueError("MD4 has three rounds, got index %r" % (round_idx,))
        a, b, c, d = state
        for j in range(16):
            i = round_idx * 16 + j
            a, b, c, d = MD4.md4_iteration(a, b, c, d, x[MD4.X(i)], i)
        return a, b, c, d

    @staticmethod
    def compress(state, block, offset=0):
        """Fold the 64-byte block at block[offset:] into state.

        Pure: returns the new 4-word state as a tuple.
        """
        x = MD4.decode_words(block, offset)
        assert len(state) == 4
        working = tuple(state)
        for r in range(3):
            working = MD4.md4_round(working, x, r)
        return tuple((s + w) & MASK for s, w in zip(state, working))

    # --- streaming ---

    def _add_bits(self, num_bytes):
        bits = num_bytes << 3
        low = self.count[0] + (bits & MASK)
        high = self.count[1] + (bits >> 32) + (low >> 32)
        self.count = [low & MASK, high & MASK]

    def update(self, data, offset=0, length=None):
        """Feed data[offset:offset + length] (the whole of data by default).

        Complete blocks are compressed immediately; fewer than 64 bytes are
        ever left pending.
        """
        view = as_window(data, offset, length)
        if data is self._buffer or view.obj is self._buffer:
            # the scratch buffer is overwritten below while still being read
            view = memoryview(bytes(view))
        length = len(view)
        index = self.pending_len
        self._add_bits(length)

        part_len = 64 - index
        i = 0
        if length >= part_len:
            self._buffer[index:] = view[:part_len]
            self.state = MD4.compress(self.state, self._buffer)
            i = part_len
            while i + 64 <= length:
                self.state = MD4.compress(self.state, view, i)
                i += 64
            index = 0

        tail = length - i
        self._buffer[index:index + tail] = view[i:]
        self.pending_len = index + tail

    def finalize(self):
        """Pad, append the bit length and return the 16-byte digest.

        The context is reset afterwards (also when an error escapes), so it
        can be reused for the next message right away.
        """
        try:
            bits = MD4.encode_words(self.count)
            index = (self.count[0] >> 3) & 0x3f
            if index < 56:
                pad_len = 56 - index
            else:
                pad_len = 120 - index
            self.update(PADDING[:pad_len])
            self.update(bits)
            assert self.pending_len == 0
            return MD4.encode_words(self.state)
        finally:
            self.initialize()

    def copy(self):
        """Return an independent context with the same running state."""
        other = type(self)()
        other.state = self.state
        other.count = list(self.count)
        other._buffer[:] = self._buffer
        other.pending_len = self.pending_len
        return other
