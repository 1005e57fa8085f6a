"""keytempo core: configuration, logging and audio decoding helpers."""
