"""Analytics collector service.

Receives batches POSTed by analytics recorders, keeps them for a retention
period and announces completed tours.
"""
