"""IDL documents and their canonical, version-independent model.

Two document shapes are supported (schema versions 1 and 2). Both normalize
into one ``CanonicalProgram`` that the synthesizer reads:

- v1: ``{"name": ..., "instructions": [...]}``
- v2: ``{"metadata": {"name", "version", "spec"}, "instructions": [...]}``
"""

SUPPORTED_VERSIONS = (1, 2)
