"""Deal module -- property mapping, schemas, approval policy and the override workflow."""
