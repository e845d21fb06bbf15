"""
Path Fit Result

경로모형 적합도 지수 결과표. 고정된 순서의 8개 지수를
이름 -> 추정값 형태의 읽기 전용 매핑으로 제공합니다.
"""

from collections.abc import Mapping
from typing import Dict, Iterator, Sequence, Tuple
import math

import numpy as np
import pandas as pd

PATH_INDEX_LABELS: Tuple[str, ...] = (
    "RMSEA-P",
    "RMSEA-P 90% lower bound",
    "RMSEA-P 90% upper bound",
    "NSCI-P",
)
HANCOCK_MUELLER_MEASURES: Tuple[str, ...] = ("srmr", "rmsea", "tli", "cfi")
HANCOCK_MUELLER_LABELS: Tuple[str, ...] = tuple(f"{name}.s" for name in HANCOCK_MUELLER_MEASURES)
INDEX_LABELS: Tuple[str, ...] = PATH_INDEX_LABELS + HANCOCK_MUELLER_LABELS

ESTIMATE_COLUMN = "Est"


class PathFitResult(Mapping):
    """경로모형 적합도 지수 결과 (생성 후 변경 불가)"""

    __slots__ = ('_labels', '_values')

    def __init__(self, labels: Sequence[str], values: Sequence[float]):
        if len(labels) != len(values):
            raise ValueError(f"라벨 수({len(labels)})와 값 수({len(values)})가 다릅니다.")
        if len(set(labels)) != len(labels):
            raise ValueError("라벨이 중복되었습니다.")
        self._labels = tuple(labels)
        self._values = tuple(float(v) for v in values)

    def __getitem__(self, key: str) -> float:
        try:
            return self._values[self._labels.index(key)]
        except ValueError:
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PathFitResult):
            return NotImplemented
        return self._labels == other._labels and all(
            (a == b) or (math.isnan(a) and math.isnan(b))
            for a, b in zip(self._values, other._values)
        )

    def __hash__(self):
        return hash((self._labels, tuple('nan' if math.isnan(v) else v for v in self._values)))

    @property
    def rmsea_p(self) -> float:
        return self["RMSEA-P"]

    @property
    def rmsea_p_interval(self) -> Tuple[float, float]:
        return self["RMSEA-P 90% lower bound"], self["RMSEA-P 90% upper bound"]

    @property
    def nsci_p(self) -> float:
        return self["NSCI-P"]

    @property
    def non_finite(self) -> Tuple[str, ...]:
        """nan/inf 값을 가진 지수 이름"""
        return tuple(label for label, value in zip(self._labels, self._values) if not np.isfinite(value))

    def to_dict(self) -> Dict[str, float]:
        return dict(zip(self._labels, self._values))

    def to_series(self) -> pd.Series:
        return pd.Series(self._values, index=list(self._labels), name=ESTIMATE_COLUMN, dtype=float)

    def to_frame(self) -> pd.DataFrame:
        """지수 이름을 행으로 하는 단일 'Est' 열 DataFrame"""
        return self.to_series().to_frame()

    def format(self, digits: int = 4) -> str:
        """
        유효숫자 digits 자리로 결과표 문자열 생성

        Args:
            digits (int): 유효숫자 수 (기본 4)

        Returns:
            str: 정렬된 결과표
        """
        width = max(len(label) for label in self._labels) if self._labels else 0
        rendered = [f"{value:.{digits}g}" for value in self._values]
        value_width = max([len(ESTIMATE_COLUMN)] + [len(v) for v in rendered])

        lines = [f"{'':<{width}}  {ESTIMATE_COLUMN:>{value_width}}"]
        for label, value in zip(self._labels, rendered):
            lines.append(f"{label:<{width}}  {value:>{value_width}}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        items = ", ".join(f"{label!r}: {value!r}" for label, value in zip(self._labels, self._values))
        return f"PathFitResult({{{items}}})"
