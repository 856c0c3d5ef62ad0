"""Core: map decoding, evidence placement, editor engine, import pipeline."""
