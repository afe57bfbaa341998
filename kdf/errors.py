"""
HKDF Length Errors
"""


class InvalidPrkLength(ValueError):
    """Pseudorandom key is shorter than the MAC output size."""

    def __init__(self, length: int, minimum: int):
        super().__init__(f"PRK must be at least {minimum} bytes, got {length}")
        self.length = length
        self.minimum = minimum


class InvalidLength(ValueError):
    """Requested output is longer than 255 MAC output blocks."""

    def __init__(self, length: int, maximum: int):
        super().__init__(f"Output length must be at most {maximum} bytes, got {length}")
        self.length = length
        self.maximum = maximum
