"""Services: record store, storage area, upload and archive import."""
