"""Feed Wrangler: split feed entry descriptions at the first paragraph."""
