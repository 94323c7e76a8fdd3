"""
Scheduling Services Package

Pure resolvers (day rules, time rules, stock, end conditions), the end-mode
reconciler, and the async reminder projection and schedule persistence.
"""
