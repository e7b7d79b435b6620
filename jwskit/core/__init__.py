"""Core JOSE primitives: codec, signature algorithms, JWS, JWK and JWT."""
