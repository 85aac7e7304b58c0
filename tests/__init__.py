# Copyright (c) Nex-AGI. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Test suite for agentic_team.

Test Structure:
- unit/: Unit tests for individual components
- utils/: Shared helpers (scripted session runtime, LLM response fixtures)

Running Tests:
- Run all tests: pytest
- Run unit tests only: pytest tests/unit/
- Run specific test file: pytest tests/unit/archs/team/test_agent_team.py
"""
