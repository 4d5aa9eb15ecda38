"""DocFlow backend: users, documents and the document ingestion pipeline."""
