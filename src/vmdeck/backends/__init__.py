"""Production implementations of the vmdeck collaborator interfaces."""
