"""Bounded-concurrency AWS Cost Explorer forecast collector."""
