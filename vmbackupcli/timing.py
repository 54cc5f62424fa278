# coding=utf-8
# pylint: disable=c0301

# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
# --------------------------------------------------------------------------

""" Timing module."""

import datetime

class Timing(object):
    """Timing class."""
    date_format = "%Y-%m-%d"

    @staticmethod
    def today():
        """Return the current local calendar date."""
        return datetime.date.today()

    @staticmethod
    def format_date(date):
        """
        Format a calendar date.

            >>> Timing.format_date(datetime.date(2024, 5, 1))
            '2024-05-01'
            >>> Timing.format_date(datetime.date(999, 1, 2))
            '0999-01-02'
        """
        # strftime does not pad years before 1000 on every platform
        return "{:04d}-{:02d}-{:02d}".format(date.year, date.month, date.day)

    @staticmethod
    def parse_date(date_str):
        """
        Parse a date string, raises ValueError for anything but a real yyyy-MM-dd date.

            >>> Timing.parse_date("2024-05-01")
            datetime.date(2024, 5, 1)
        """
        return datetime.datetime.strptime(date_str, Timing.date_format).date()

    @staticmethod
    def age_in_days(date, today):
        """
        Number of days between date and today.

            >>> Timing.age_in_days(datetime.date(2024, 4, 1), datetime.date(2024, 5, 1))
            30
        """
        return (today - date).days

    @staticmethod
    def is_older_than(date, days, today):
        """Whether date lies more than the given number of days before today."""
        return Timing.age_in_days(date, today) > days
