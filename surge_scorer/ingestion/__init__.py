"""Price history ingestion: delimited text → ordered, validated OHLCV rows."""
