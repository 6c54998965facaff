"""Input/output schemas of the tools in ``testlab.tools``."""
