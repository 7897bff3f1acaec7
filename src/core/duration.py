"""时长解析

把 "3 days" / "2weeks" / "90minutes" / "1 month" 这类文本转换为 timedelta。
解析前去掉全部空白 ("3 days" 与 "3days" 等价)。月与年按平均长度换算
(1 月 = 30.44 天, 1 年 = 365.25 天), 大写 "M" 表示月, 小写 "m" 表示分钟;
其余单位的各种写法 (单复数、缩写) 交给 pytimeparse 识别。
这里不设上限, 上限之类的策略属于准入层。
"""

import re
from datetime import timedelta

from pytimeparse.timeparse import timeparse

from errors import DurationParseError

__all__ = ["parse_duration"]

_DURATION_PATTERN = re.compile(r"(\d+)([A-Za-z]+)")

_MONTH_SECONDS = 2_630_016   # 30.44 天
_YEAR_SECONDS = 31_557_600   # 365.25 天

# pytimeparse 不认识的单位; 键为小写, 大写 "M" 单独处理
_LONG_UNITS = {
    "month": _MONTH_SECONDS,
    "months": _MONTH_SECONDS,
    "mo": _MONTH_SECONDS,
    "year": _YEAR_SECONDS,
    "years": _YEAR_SECONDS,
    "y": _YEAR_SECONDS,
    "yr": _YEAR_SECONDS,
    "yrs": _YEAR_SECONDS,
}


def _long_unit_seconds(unit: str) -> int | None:
    if unit == "M":
        return _MONTH_SECONDS
    return _LONG_UNITS.get(unit.lower())


def parse_duration(text: str) -> timedelta:
    if not isinstance(text, str):
        raise DurationParseError(repr(text), "时长必须是字符串")

    compact = "".join(text.split())
    match = _DURATION_PATTERN.fullmatch(compact)
    if match is None:
        raise DurationParseError(text, "时长格式应为 <数字><可选空格><单位>")

    magnitude, unit = match.groups()
    if int(magnitude) <= 0:
        raise DurationParseError(text, "时长必须大于零")

    unit_seconds = _long_unit_seconds(unit)
    if unit_seconds is not None:
        seconds = int(magnitude) * unit_seconds
    else:
        seconds = timeparse(f"{magnitude}{unit}")
    if seconds is None:
        raise DurationParseError(text, "未知的时间单位")
    try:
        return timedelta(seconds=seconds)
    except OverflowError as e:
        raise DurationParseError(text, "时长超出可表示范围") from e
