"""
Tests for table statistics.
"""

from data_reshaper.table import Table
from data_reshaper.utils.stats import describe_table, to_dataframe


def test_to_dataframe_pads_short_rows():
    table = Table(name="t", headers=["a", "b", "a"], rows=[["1"], ["1", "2", "3", "4"]])

    df = to_dataframe(table)

    assert df.shape == (2, 3)
    assert df.iloc[0].tolist() == ["1", "", ""]
    assert df.iloc[1].tolist() == ["1", "2", "3"]


def test_describe_table():
    table = Table(
        name="members",
        headers=["Name", "City"],
        rows=[["Anna", "Berlin"], ["Ben", ""], [" ", ""], ["Anna", "Berlin"], ["Cem"]],
    )

    stats = describe_table(table)

    assert stats["total_rows"] == 5
    assert stats["total_columns"] == 2
    assert stats["empty_rows"] == 1
    assert stats["malformed_rows"] == 1
    name_stats, city_stats = stats["column_stats"]
    assert name_stats == {
        "name": "Name",
        "total_values": 5,
        "non_empty_values": 4,
        "empty_values": 1,
        "unique_values": 3,
        "sample_values": ["Anna", "Ben", "Cem"],
    }
    assert city_stats["non_empty_values"] == 2
    assert city_stats["unique_values"] == 1


def test_describe_table_without_rows():
    stats = describe_table(Table(name="empty", headers=["a", "b"], rows=[]))
    assert stats["total_rows"] == 0
    assert stats["empty_rows"] == 0
    assert [c["non_empty_values"] for c in stats["column_stats"]] == [0, 0]
