"""
Tests for reading-date parsing and the yearly/monthly statistics.
"""
import pytest

from app.internal.stats import (
    ReadDate,
    calculate_statistics,
    filter_by_month,
    filter_by_shelf,
    filter_by_year,
    monthly_breakdown,
    parse_read_date,
    year_counts,
)


class TestParseReadDate:

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2024/03/15", ReadDate(year=2024, month=3, day=15)),
            ("2024-03-15", ReadDate(year=2024, month=3, day=15)),
            ("2024/03", ReadDate(year=2024, month=3)),
            ("2024", ReadDate(year=2024)),
            (" 2024/1/2 ", ReadDate(year=2024, month=1, day=2)),
        ],
    )
    def test_valid_dates(self, value, expected):
        assert parse_read_date(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["", "   ", "sometime", "1899/01/01", "2024/13/01", "2024/00/10", "2024/02/32", "2024/01/01/01"],
    )
    def test_invalid_dates(self, value):
        with pytest.raises(ValueError):
            parse_read_date(value)


class TestFilters:

    def test_filter_by_year_skips_bad_dates(self, sample_books):
        books = filter_by_year(sample_books, 2024)

        assert [b.id for b in books] == [1, 2, 4, 5]

    def test_filter_by_year_no_matches(self, sample_books):
        assert filter_by_year(sample_books, 1999) == []

    def test_filter_by_shelf(self, sample_books):
        books = filter_by_shelf(sample_books, "currently-reading")

        assert [b.title for b in books] == ["Middlemarch"]

    def test_filter_by_month(self, sample_books):
        books = filter_by_month(sample_books, 3)

        assert [b.title for b in books] == ["Piranesi", "The Hobbit"]


class TestStatistics:

    def test_calculate_statistics(self, sample_books):
        read_2024 = filter_by_shelf(filter_by_year(sample_books, 2024), "read")

        stats = calculate_statistics(read_2024, 2024)

        assert stats.year == 2024
        assert stats.total_books == 3
        # The Hobbit has no page count
        assert stats.total_pages == 604 + 272
        assert stats.average_per_month == pytest.approx(0.25)

    def test_calculate_statistics_empty(self):
        stats = calculate_statistics([], 2020)

        assert stats.total_books == 0
        assert stats.total_pages == 0
        assert stats.average_per_month == 0.0

    def test_monthly_breakdown_has_twelve_months(self, sample_books):
        breakdown = monthly_breakdown(filter_by_year(sample_books, 2024))

        assert len(breakdown) == 12
        assert [m.month for m in breakdown] == list(range(1, 13))
        assert breakdown[0].month_name == "Jan"
        assert breakdown[0].count == 1
        assert breakdown[2].count == 2
        assert breakdown[4].count == 1
        assert sum(m.count for m in breakdown) == 4

    def test_monthly_breakdown_ignores_year_only_dates(self, sample_books):
        sample_books[0].date_read = "2024"

        breakdown = monthly_breakdown(sample_books[:1])

        assert all(m.count == 0 for m in breakdown)

    def test_year_counts_only_read_shelf(self, sample_books):
        counts = year_counts(sample_books)

        assert [(c.year, c.count) for c in counts] == [(2024, 3), (2023, 1)]

    def test_year_counts_empty(self):
        assert year_counts([]) == []
