r"""Utilities shared by the request pipeline."""
