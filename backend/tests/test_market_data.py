import random

from trendchart.binance_client import parse_klines
from trendchart.market_data import generate_mock_ohlc


def test_mock_ohlc_is_a_consistent_five_minute_series():
    candles = generate_mock_ohlc(count=100, now=1_700_000_000, rng=random.Random(7))

    assert len(candles) == 100
    assert candles[0]["timestamp"] == 1_700_000_000 - 100 * 300
    assert candles[-1]["timestamp"] == 1_700_000_000 - 300
    steps = {b["timestamp"] - a["timestamp"] for a, b in zip(candles, candles[1:])}
    assert steps == {300}
    for candle in candles:
        assert candle["low"] <= min(candle["open"], candle["close"])
        assert candle["high"] >= max(candle["open"], candle["close"])
        assert 100 <= candle["volume"] < 1100
    assert candles[0]["open"] == 43000.0


def test_mock_ohlc_chains_close_into_next_open():
    candles = generate_mock_ohlc(count=5, now=0, rng=random.Random(1))
    for previous, current in zip(candles, candles[1:]):
        assert abs(current["open"] - previous["close"]) < 0.011


def test_parse_klines_converts_milliseconds():
    candles = parse_klines([[1_700_000_000_999, "1", "2", "0.5", "1.5", "7", 0]])
    assert candles == [
        {"timestamp": 1_700_000_000, "open": 1.0, "high": 2.0, "low": 0.5, "close": 1.5, "volume": 7.0}
    ]


def test_mock_ohlc_keeps_precision_for_sub_dollar_prices():
    candles = generate_mock_ohlc(count=3, base_price=0.8956, now=0, rng=random.Random(3))
    assert candles[0]["open"] == 0.8956
    assert abs(candles[0]["close"] - 0.8956) <= 0.009
