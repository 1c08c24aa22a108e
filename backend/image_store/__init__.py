"""Image store: validates uploaded images and keeps the accepted ones."""
