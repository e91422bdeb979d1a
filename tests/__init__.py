"""Test suite for kvsession.

Unit tests live under unit/<domain>/ and are collected by conftest.py even
though their file names carry no test_ prefix. Engine, tokenizer and sampler
fakes live in helpers/; shared constants in config/.
"""
