"""Request encoding and response decoding driven by per-type field tables."""
