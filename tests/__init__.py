"""
keepass-2-file test suite
=========================

Test Modules
------------
- test_diagnostics.py: Diagnostic kinds, messages and the collector
- test_resolver.py: Field selection and entry lookup
- test_models.py: Configuration document mutations
- test_config_store.py: Loading, upgrading and saving the YAML file
- test_variables.py: ``key=value`` parsing and merging
- test_engine.py: Single and batch rendering
- test_parsers.py: Output path resolution
- test_io.py: Atomic file writes
- test_cli.py: Command-line interface
"""
