"""
FastAPI Task Backend package.

Core pieces:
- models: Task, Priority, Status
- priority_index: PriorityIndex, the id-indexed heap behind "what is next?"
- queries: pure batch queries over a task snapshot

The FastAPI app lives in src.api.main (import it explicitly; importing this
package does not configure logging or build the app).
"""
