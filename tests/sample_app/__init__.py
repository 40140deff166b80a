"""Sample application packages used as scan targets by the test suite."""
