"""Upload edge: captures browser uploads and relays them to the image store."""
