"""
Runtime subpackage -- OpenVINO execution.

    environment    -- process-wide Core and device selection
    local_backend  -- model loading, output discovery, forward passes
"""
