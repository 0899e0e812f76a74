"""
Request lifecycle logic: invocation context, parameter gate and deferred log shipper.
"""
