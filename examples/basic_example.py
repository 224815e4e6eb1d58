"""
Basic example of generating a GraphQL API with docql.

This example demonstrates:
- Compiling SDL that follows the <Type>_<operation> naming convention
- Comparison filters such as {gt: 30}
- Owner-scoped types marked with @auth and a stored credential

Environment variables:
  DOCQL_DATABASE_URL  optional SQLAlchemy async URL (defaults to in-memory SQLite)
  DOCQL_ECHO_SQL      set to 1 to log every statement
"""

import asyncio
import logging

from docql import Settings, create_api

SCHEMA = """
directive @auth on OBJECT

input FilterFloat {
  eq: Float,
  lt: Float,
  gt: Float
}

type Query {
  Person_findById(_id: ID!): Person
  Person_findByAge(age: FilterFloat!): [Person]
  Todo_find: [Todo]
}
type Person {
  _id: ID!
  name: String!
  age: Float!
}
type User {
  _id: ID!
  name: String!
}
type Todo @auth {
  _id: ID!
  userId: ID!
  done: Boolean!
  description: String!
}
input PersonInput {
  name: String
  age: Float
}
input TodoUpdate {
  done: Boolean
  description: String
}

type Mutation {
  Person_create(data: PersonInput!): Person
  Person_update(_id: ID!, update: PersonInput!): Person
  Todo_update(_id: ID!, update: TodoUpdate!): Todo
}
"""


async def main():
    logging.basicConfig(level=logging.INFO)
    api = await create_api(SCHEMA, Settings.from_env())
    store = api.store

    await store['Person'].create({'name': 'Val', 'age': 31})
    res = await api.execute('{ Person_findByAge(age: {gt: 30}) { _id name age } }')
    print("People over 30:", res.data)

    val = await store['User'].create({'name': 'Val'})
    await store['Todo'].create({'userId': val['_id'], 'done': False, 'description': 'write blog post'})
    await store['AccessToken'].create({'_id': 'testtoken', 'userId': val['_id']})

    res = await api.execute('{ Todo_find { done description } }', headers={'Authorization': 'testtoken'})
    print("Val's todos:", res.data)
    res = await api.execute('{ Todo_find { done description } }')
    print("Anonymous todos:", res.data)

    await store.dispose()


if __name__ == "__main__":
    asyncio.run(main())
