"""CLI tools for ragassist."""
