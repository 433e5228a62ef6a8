"""Fields, schemas and the :any:`Model` base class."""
