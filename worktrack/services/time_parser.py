import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

UNIT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*([wdhm])")
CLOCK_PATTERN = re.compile(r"(\d+):(\d{1,2})(?::(\d{1,2}))?")


class TimeParseError(ValueError):
    pass


class TimeParser:
    """Parses user-entered durations and dates using the user's preferences"""

    @staticmethod
    def parse_time(user, text, minutes: bool = False) -> int:
        """
        Parse a duration such as "1w 2d 3h 4m", "1:30", "1:30:00" or "90".

        Weeks and days follow the user's workday length and days per week.
        A bare number is minutes. Returns seconds, or minutes if asked.
        Text without any digits is no duration (0); digits that fit none
        of the forms raise TimeParseError.
        """
        seconds = 0.0
        text = (text or "").strip().lower()

        if text:
            workday = user.workday_duration or 480
            days_per_week = user.days_per_week or 5
            units = UNIT_PATTERN.findall(text)
            clock = CLOCK_PATTERN.fullmatch(text)

            if units:
                if re.search(r"\d", UNIT_PATTERN.sub("", text)):
                    raise TimeParseError(f"Unrecognised duration: {text!r}")
                for amount, unit in units:
                    amount = float(amount)
                    if unit == "w":
                        seconds += amount * workday * days_per_week * 60
                    elif unit == "d":
                        seconds += amount * workday * 60
                    elif unit == "h":
                        seconds += amount * 3600
                    else:
                        seconds += amount * 60
            elif clock:
                hours, mins, secs = clock.groups()
                if int(mins) >= 60 or int(secs or 0) >= 60:
                    raise TimeParseError(f"Unrecognised duration: {text!r}")
                seconds = int(hours) * 3600 + int(mins) * 60 + int(secs or 0)
            elif text.isdigit():
                seconds = int(text) * 60
            elif re.search(r"\d", text):
                raise TimeParseError(f"Unrecognised duration: {text!r}")

        if minutes:
            return int(round(seconds / 60))
        return int(round(seconds))

    @staticmethod
    def parse_date(user, raw) -> datetime:
        """
        Parse raw with the user's date and time formats in the user's time
        zone and return a naive UTC datetime. Raises TimeParseError.
        """
        if isinstance(raw, datetime):
            local = raw
        else:
            date_format = f"{user.date_format} {user.time_format}"
            try:
                local = datetime.strptime(str(raw or "").strip(), date_format)
            except ValueError:
                raise TimeParseError(f"Date must look like {date_format!r}: {raw!r}")

        if local.tzinfo is None:
            local = local.replace(tzinfo=TimeParser.user_zone(user))
        return local.astimezone(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def date_from_params(user, params: dict, key: str) -> datetime:
        """Like parse_date on params[key], but now (UTC) when missing or invalid"""
        raw = (params or {}).get(key)
        if not raw:
            return datetime.utcnow()
        try:
            return TimeParser.parse_date(user, raw)
        except TimeParseError:
            return datetime.utcnow()

    @staticmethod
    def user_zone(user):
        try:
            return ZoneInfo(user.time_zone or "UTC")
        except (ZoneInfoNotFoundError, ValueError):
            return timezone.utc
