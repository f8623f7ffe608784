"""
Core download pipeline: resolver, lister, queue builder, executor and the
orchestrator tying them together. Import components from their modules.
"""
