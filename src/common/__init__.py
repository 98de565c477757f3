"""
Shared configuration, exceptions and models for mailcapture.
"""
