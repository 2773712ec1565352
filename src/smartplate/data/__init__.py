"""Recipe data model, catalog and preferences store."""
