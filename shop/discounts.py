"""
Shop Service — 割引計算

注文価格に影響する 3 種類の調整を計算する純粋関数群。

  - 数量割引 (volume):    注文全体の合計数量で決まる割引率
  - 地域係数 (location):  顧客地域ごとの価格係数（割引ではなく倍率）
  - 季節割引 (seasonal):  日付とカテゴリで決まるキャンペーン割引率

調整は重ね掛けしない。select_adjustment() が最も有利な 1 つだけを選び、
どの調整が選ばれたかをタグ付きで返す。
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

ZERO = Decimal("0")
ONE = Decimal("1")

# (下限数量, 割引率) — 大きい閾値から順に評価する
VOLUME_TIERS = (
    (50, Decimal("0.30")),
    (10, Decimal("0.20")),
    (5, Decimal("0.10")),
)

LOCATION_MULTIPLIERS = {
    "US": Decimal("1.00"),
    "Europe": Decimal("1.15"),  # VAT
    "Asia": Decimal("0.95"),  # 物流コストが低い
}

BLACK_FRIDAY = (11, 25)
BLACK_FRIDAY_DISCOUNT = Decimal("0.25")
CHRISTMAS_MONTH = 12
CHRISTMAS_DAYS = range(24, 27)
CHRISTMAS_CATEGORIES = frozenset({"Electronics", "Toys"})
CHRISTMAS_DISCOUNT = Decimal("0.15")


def volume_discount(total_quantity: int) -> Decimal:
    for threshold, rate in VOLUME_TIERS:
        if total_quantity >= threshold:
            return rate
    return ZERO


def location_multiplier(location: str | None) -> Decimal:
    """未知の地域・未指定は標準価格 (1.00)。"""
    return LOCATION_MULTIPLIERS.get(location or "", ONE)


def seasonal_discount(order_date: date, categories: Iterable[str]) -> Decimal:
    """
    年は無視し、月日だけで判定する。

    ブラックフライデー (11/25) はカテゴリに関係なく適用される。
    クリスマス (12/24-26) は Electronics か Toys を含む注文のみ。
    """
    if (order_date.month, order_date.day) == BLACK_FRIDAY:
        return BLACK_FRIDAY_DISCOUNT

    if order_date.month == CHRISTMAS_MONTH and order_date.day in CHRISTMAS_DAYS:
        if CHRISTMAS_CATEGORIES.intersection(categories):
            return CHRISTMAS_DISCOUNT

    return ZERO


def location_discount_equivalent(multiplier: Decimal) -> Decimal:
    """係数 1.0 以上（値上げ）は割引として扱わない。"""
    return max(ZERO, ONE - multiplier)


def best_discount(volume: Decimal, seasonal: Decimal, multiplier: Decimal) -> Decimal:
    return max(volume, seasonal, location_discount_equivalent(multiplier))


@dataclass(frozen=True, slots=True)
class Adjustment:
    """
    選ばれた 1 つの価格調整。

    kind:
        "volume" / "seasonal" — value は割引率
        "location"            — value は価格係数 (>1.0 なら値上げ)
        "none"                — 調整なし
    """

    kind: str
    value: Decimal = ZERO

    def apply(self, amount: Decimal) -> Decimal:
        if self.kind == "location":
            return amount * self.value
        if self.kind == "none":
            return amount
        return amount * (ONE - self.value)


def select_adjustment(
    volume: Decimal, seasonal: Decimal, multiplier: Decimal
) -> Adjustment:
    """
    最も有利な調整を 1 つだけ選ぶ。

    数量割引・季節割引が地域係数の割引相当を上回れば、地域係数は捨てる。
    そうでなければ地域係数そのもの（値上げを含む）を適用する。
    """
    if max(volume, seasonal) > location_discount_equivalent(multiplier):
        if volume >= seasonal:
            return Adjustment("volume", volume)
        return Adjustment("seasonal", seasonal)

    if multiplier != ONE:
        return Adjustment("location", multiplier)
    return Adjustment("none")
