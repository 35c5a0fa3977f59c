"""CodeWizard: documentation-augmented chat proxy."""

__version__ = "0.1.0"
