from typing import Iterable, Sequence


class MinMaxTracker:
    def __init__(self):
        self.min = None
        self.max = None

    def add(self, v):
        if self.min is None or v < self.min:
            self.min = v

        if self.max is None or v > self.max:
            self.max = v

    def extend(self, values: Iterable):
        for v in values:
            self.add(v)


class BoundingBoxTracker:
    """
    Component-wise min/max over a run of equally sized vectors.
    """

    def __init__(self):
        self.min = None
        self.max = None

    def add(self, v: Sequence):
        if self.min is None:
            self.min = list(v)
        else:
            for i, x in enumerate(v):
                if x < self.min[i]:
                    self.min[i] = x

        if self.max is None:
            self.max = list(v)
        else:
            for i, x in enumerate(v):
                if x > self.max[i]:
                    self.max[i] = x

    def extend(self, vectors: Iterable[Sequence]):
        for v in vectors:
            self.add(v)


def pad_to_4(data: bytearray) -> bytearray:
    # glTF buffer views must start on a 4 byte boundary
    while len(data) % 4 != 0:
        data.append(0)

    return data
