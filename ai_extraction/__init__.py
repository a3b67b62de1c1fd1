"""Multi-provider AI extraction of structured fields from identity and financial documents."""
