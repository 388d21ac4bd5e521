"""Pure rules: workflow, versioning, substitution, markup, filenames."""
