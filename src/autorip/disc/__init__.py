"""Disc records and the inventory that reports them."""
