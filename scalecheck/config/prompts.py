# scalecheck/config/prompts.py
"""Instructions sent to the analysis tool, one per analysis pass."""

STRUCTURE_PROMPT = """Analyze this codebase and identify:
1. Primary programming language
2. Web framework being used
3. Key dependencies and libraries
4. Number of API endpoints/routes
5. Background job processing (if any)
6. File upload capabilities

Respond in this JSON format:
{
  "language": "string",
  "framework": "string",
  "dependencies": ["dep1", "dep2"],
  "api_endpoints": number,
  "background_jobs": ["job1", "job2"],
  "file_uploads": boolean
}"""

DATABASE_API_PROMPT = """Analyze database and API patterns in this codebase:
1. Count database queries/calls
2. Identify database connection patterns
3. Look for N+1 query problems
4. Find caching usage (Redis, Memcached, etc.)
5. Estimate complexity on a scale of 1-100

Focus on scalability concerns and potential bottlenecks."""

PERFORMANCE_PROMPT = """Identify scaling bottlenecks and performance issues:
1. Database connection limits
2. Memory-intensive operations
3. CPU-heavy computations
4. Network bottlenecks
5. Synchronous operations that should be async
6. Large payload responses
7. Security vulnerabilities that affect availability (injection, hardcoded secrets)

For each issue, specify type (database/cpu/memory/network) and severity (low/medium/high/critical).
Where known, also state the average response time in ms, database queries per request and cache hit rate."""

RESOURCE_PROMPT_TEMPLATE = """Based on this {language}/{framework} application with {endpoints} API endpoints and {jobs} background jobs:

Estimate resource requirements for 1000 concurrent users:
1. Memory usage in MB
2. CPU cores needed
3. Database connections required
4. Network bandwidth in Mbps
5. Storage requirements in GB

Consider the complexity score of {complexity} and provide realistic estimates."""
