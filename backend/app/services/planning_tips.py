"""
Planning tips derived from the weekly weather forecast.
"""
from typing import List

from backend.app.schemas.activities import WeatherDay

HEAT_THRESHOLD_F = 85
RAIN_THRESHOLD_PCT = 50

DEFAULT_TIPS = [
    "Parking: Downtown parking is free on weekends. For large festivals, look for free shuttle service from downtown parking garages.",
    "Family-Friendly Notes: Popular markets and festivals get crowded with strollers, so consider baby carriers for small children.",
]


def _day_name(day: WeatherDay) -> str:
    return day.date.split(",")[0].strip()


def weather_planning_tips(forecast: List[WeatherDay]) -> List[str]:
    if not forecast:
        return ["Weather: Weather forecast unavailable. Check local weather services before heading out."]

    tips = []

    hot_days = [_day_name(day) for day in forecast if day.temp.max > HEAT_THRESHOLD_F]
    if hot_days:
        tips.append(
            f"Heat Advisory: Temperatures will reach above {HEAT_THRESHOLD_F}°F on {', '.join(hot_days)}. "
            "Stay hydrated and wear sunscreen for outdoor events."
        )

    rainy_days = [_day_name(day) for day in forecast if day.precipitation > RAIN_THRESHOLD_PCT]
    if rainy_days:
        tips.append(
            f"Rain Alert: High chance of precipitation on {', '.join(rainy_days)}. "
            "Consider bringing an umbrella or rain jacket for outdoor activities."
        )

    average_high = round(sum(day.temp.max for day in forecast) / len(forecast))
    average_low = round(sum(day.temp.min for day in forecast) / len(forecast))
    tips.append(
        f"Weekly Weather: Expect temperatures ranging from {average_low}°F to {average_high}°F this week. "
        f"{forecast[0].weather} conditions expected for most of the week."
    )
    return tips
