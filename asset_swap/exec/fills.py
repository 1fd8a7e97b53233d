"""
Fill合并 - 相邻同源fill合并为一个CollapsedFill
"""

from typing import List, Sequence

from ..dto.core_dtos import Fill, CollapsedFill, VenueSource


def _to_collapsed(fill: Fill) -> CollapsedFill:
    if isinstance(fill, CollapsedFill):
        return fill
    return CollapsedFill(
        source=fill.source,
        input=fill.input,
        output=fill.output,
        native_order=fill.native_order,
        subfills=(fill,),
    )


def _merge(prev: CollapsedFill, fill: Fill) -> CollapsedFill:
    subfills = fill.subfills if isinstance(fill, CollapsedFill) else (fill,)
    return CollapsedFill(
        source=prev.source,
        input=prev.input + fill.input,
        output=prev.output + fill.output,
        subfills=prev.subfills + subfills,
    )


def collapse_path(path: Sequence[Fill]) -> List[CollapsedFill]:
    """
    合并路径中相邻的同源fill

    原生订单从不合并；保持相对顺序，结果长度不超过输入。
    对已合并的路径再次调用结果不变。
    """
    collapsed: List[CollapsedFill] = []
    for fill in path:
        if collapsed and fill.source is not VenueSource.NATIVE and collapsed[-1].source is fill.source:
            collapsed[-1] = _merge(collapsed[-1], fill)
            continue
        collapsed.append(_to_collapsed(fill))
    return collapsed
