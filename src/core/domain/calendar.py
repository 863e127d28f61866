"""Calendario Jalali (Shamsi) <-> Gregoriano.

Por qué en el dominio:
- Es aritmética pura (sin I/O) y la necesitan tanto el pipeline como la CLI.
- Un único algoritmo: tabla de breakpoints del ciclo irregular de 33 años,
  válido para años Jalali en [-61, 3177]. No hay parches por rango de años.

Convención: toda la aritmética intermedia usa división truncada (hacia cero),
porque algunos términos pueden ser negativos.
"""

from __future__ import annotations

import datetime as _dt
from typing import NamedTuple

from core.errors import CalendarRangeError, InvalidCalendarDate

# Años Jalali donde se re-ancla la aproximación del ciclo bisiesto.
JALALI_BREAKPOINTS: tuple[int, ...] = (
    -61, 9, 38, 199, 426, 686, 756, 818, 1111, 1181,
    1210, 1635, 2060, 2097, 2192, 2262, 2324, 2394, 2456, 3178,
)

MIN_JALALI_YEAR = JALALI_BREAKPOINTS[0]
MAX_JALALI_YEAR = JALALI_BREAKPOINTS[-1] - 1


class JalaliDate(NamedTuple):
    year: int
    month: int
    day: int


class GregorianDate(NamedTuple):
    year: int
    month: int
    day: int

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


class _JalaliYearInfo(NamedTuple):
    leap: int  # 0 => año bisiesto
    gregorian_year: int
    march_day: int  # día de marzo en que cae Nowruz


def _div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _mod(a: int, b: int) -> int:
    return a - _div(a, b) * b


def _jalali_year_info(jy: int) -> _JalaliYearInfo:
    if jy < MIN_JALALI_YEAR or jy > MAX_JALALI_YEAR:
        raise CalendarRangeError(
            f"Jalali year {jy} outside supported range [{MIN_JALALI_YEAR}, {MAX_JALALI_YEAR}]"
        )

    gy = jy + 621
    leap_j = -14
    jp = JALALI_BREAKPOINTS[0]
    jump = 0
    for jm in JALALI_BREAKPOINTS[1:]:
        jump = jm - jp
        if jy < jm:
            break
        leap_j += _div(jump, 33) * 8 + _div(_mod(jump, 33), 4)
        jp = jm

    n = jy - jp
    leap_j += _div(n, 33) * 8 + _div(_mod(n, 33) + 3, 4)
    if _mod(jump, 33) == 4 and jump - n == 4:
        leap_j += 1

    # Bisiestos gregorianos acumulados (regla estándar) con offset de época.
    leap_g = _div(gy, 4) - _div((_div(gy, 100) + 1) * 3, 4) - 150
    march = 20 + leap_j - leap_g

    if jump - n < 6:
        n = n - jump + _div(jump + 4, 33) * 33
    leap = _mod(_mod(n + 1, 33) - 1, 4)
    if leap == -1:
        leap = 4

    return _JalaliYearInfo(leap=leap, gregorian_year=gy, march_day=march)


def _gregorian_to_day_number(gy: int, gm: int, gd: int) -> int:
    d = (
        _div((gy + _div(gm - 8, 6) + 100100) * 1461, 4)
        + _div(153 * _mod(gm + 9, 12) + 2, 5)
        + gd
        - 34840408
    )
    return d - _div(_div(gy + 100100 + _div(gm - 8, 6), 100) * 3, 4) + 752


def _day_number_to_gregorian(jdn: int) -> GregorianDate:
    j = 4 * jdn + 139361631
    j = j + _div(_div(4 * jdn + 183187720, 146097) * 3, 4) * 4 - 3908
    i = _div(_mod(j, 1461), 4) * 5 + 308
    gd = _div(_mod(i, 153), 5) + 1
    gm = _mod(_div(i, 153), 12) + 1
    gy = _div(j, 1461) - 100100 + _div(8 - gm, 6)
    return GregorianDate(gy, gm, gd)


def is_jalali_leap_year(jy: int) -> bool:
    return _jalali_year_info(jy).leap == 0


def jalali_month_length(jy: int, jm: int) -> int:
    """Días del mes `jm` (1..12): 31 x6, 30 x5, y Esfand 29/30 según bisiesto."""

    if not 1 <= jm <= 12:
        raise InvalidCalendarDate(f"Jalali month {jm} is not in 1..12")
    if jm <= 6:
        return 31
    if jm <= 11:
        return 30
    return 30 if is_jalali_leap_year(jy) else 29


def is_valid_jalali_date(jy: int, jm: int, jd: int) -> bool:
    try:
        _check_jalali_date(jy, jm, jd)
    except (CalendarRangeError, InvalidCalendarDate):
        return False
    return True


def _check_jalali_date(jy: int, jm: int, jd: int) -> None:
    _jalali_year_info(jy)
    length = jalali_month_length(jy, jm)
    if not 1 <= jd <= length:
        raise InvalidCalendarDate(f"Jalali date {jy}/{jm}/{jd} is invalid (month has {length} days)")


def jalali_to_day_number(jy: int, jm: int, jd: int) -> int:
    _check_jalali_date(jy, jm, jd)
    info = _jalali_year_info(jy)
    return (
        _gregorian_to_day_number(info.gregorian_year, 3, info.march_day)
        + (jm - 1) * 31
        - _div(jm, 7) * (jm - 7)
        + jd
        - 1
    )


def jalali_to_gregorian(jy: int, jm: int, jd: int) -> GregorianDate:
    """Convierte una fecha Jalali válida a Gregoriana.

    Lanza:
    - `CalendarRangeError` si `jy` cae fuera de la tabla de breakpoints.
    - `InvalidCalendarDate` si el día/mes no existe (nunca se recorta).
    """

    return _day_number_to_gregorian(jalali_to_day_number(jy, jm, jd))


def gregorian_to_jalali(gy: int, gm: int, gd: int) -> JalaliDate:
    """Conversión inversa (Gregoriano -> Jalali)."""

    try:
        _dt.date(gy, gm, gd)
    except ValueError as exc:
        raise InvalidCalendarDate(f"Gregorian date {gy}-{gm}-{gd} is invalid: {exc}") from exc

    jdn = _gregorian_to_day_number(gy, gm, gd)
    jy = gy - 621
    info = _jalali_year_info(jy)
    k = jdn - _gregorian_to_day_number(gy, 3, info.march_day)

    if k >= 0:
        if k <= 185:
            return JalaliDate(jy, 1 + _div(k, 31), _mod(k, 31) + 1)
        k -= 186
    else:
        jy -= 1
        k += 179
        if info.leap == 1:
            k += 1

    return JalaliDate(jy, 7 + _div(k, 30), _mod(k, 30) + 1)
